# vaultclash/content/__init__.py
