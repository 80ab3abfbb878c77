# src/jstrack/cli/__init__.py
