# store_monitor/__init__.py
