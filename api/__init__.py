# rangeblock/api/__init__.py
