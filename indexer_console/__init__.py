"""Indexer-Console - synchronisation d'état de la console d'indexers"""

__version__ = "1.0.0"
