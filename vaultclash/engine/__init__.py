# vaultclash/engine/__init__.py
