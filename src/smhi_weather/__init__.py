"""SMHI observation and forecast retrieval with normalized weather records."""
