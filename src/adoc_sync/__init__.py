"""Change classification and structural synchronization for bilingual AsciiDoc trees."""

__version__ = "0.3.0"
