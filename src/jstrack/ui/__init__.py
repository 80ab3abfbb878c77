# src/jstrack/ui/__init__.py
