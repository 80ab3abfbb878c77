# src/jstrack/api/__init__.py
