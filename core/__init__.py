# rangeblock/core/__init__.py
