"""
tgcli - command line client for TigerGraph Cloud and TigerGraph servers.

Manages tgcloud.io instances, runs an interactive GSQL shell against a
server's GSQL endpoint, triggers service operations and keeps server
aliases in a local YAML configuration.
"""

__version__ = "0.1.1"
__author__ = "zrougamed"
