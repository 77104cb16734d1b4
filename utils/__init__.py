# rangeblock/utils/__init__.py
