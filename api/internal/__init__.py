# rangeblock/api/internal/__init__.py
