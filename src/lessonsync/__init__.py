"""LessonSync - Copy the latest lesson recording to Google Drive."""

__version__ = "0.1.0"
