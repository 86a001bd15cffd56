"""Endpoints, protocol markers and the GSQL client version table."""

from typing import List, Tuple

TGCLOUD_BASE_URL = "https://tgcloud.io/api"
TIGERTOOL_URL = "https://tigertool.tigergraph.com"

CONFIG_DIR_NAME = ".tgcli"
CONFIG_FILE_NAME = "config.yml"
CREDS_FILE_NAME = "creds.bank"
CONFIG_DIR_ENV = "TGCLI_CONFIG_DIR"

DEFAULT_HOST = "http://127.0.0.1"
DEFAULT_USER = "tigergraph"
DEFAULT_PASSWORD = "tigergraph"
DEFAULT_GS_PORT = "14240"
DEFAULT_REST_PORT = "9000"
DEFAULT_TGCLOUD_USER = "mail@domain.com"

GSQL_PATH = "/gsqlserver/gsql/"
GSQL_SEPARATOR = "__GSQL__"
GSQL_COOKIES = "__GSQL__COOKIES__"
GSQL_COOKIES_DELIMITER = "__,"
FILE_ENDPOINT = "file"
LOGIN_ENDPOINT = "login"

# The GSQL server only accepts clients that identify as the Java shell.
GSQL_USER_AGENT = "Java/1.8.0"
GSQL_CONTENT_TYPE = "application/x-www-form-urlencoded"
GSQL_CONTENT_LANGUAGE = "en-US"
GSQL_SECRET_USER = "__GSQL__secret"
GSQL_TIMEOUT_SECONDS = 60.0

# Tried in this order during login; the first version the server accepts wins.
VERSION_COMMITS: List[Tuple[str, str]] = [
    ("3.6.2", "31716aa98a0d4bd3bd7c5488dfc795a82dfee80d"),
    ("3.6.1", "b77b8fc6c2ceadd457571fc0a6ce1fb243e5f31c"),
    ("3.6.0", "b77b8fc6c2ceadd457571fc0a6ce1fb243e5f31c"),
    ("3.5.3", "7edb256d9750ab4451d27eef605e58e9adcedc7a"),
    ("3.5.0", "375e661f96298db4df018037949827e16ee8df60"),
    ("3.4.0", "421b0740e4a9f61d6eb0e03a4d2079de625a3ffe"),
    ("3.3.0", "90cc0512851acca2be10044878815bc414876f23"),
    ("3.2.2", "a31220261f440f61ebf3edfb1a84efba62939177"),
    ("3.2.1", "986e09c5d17d303659bed1342506a1c458462e30"),
    ("3.2.0", "f451d8a9a66c7ca0d8d4d9046f440f21097cdd03"),
    ("3.1.6", "71b39b25e198f690e28113e7f8874dab7b4559ec"),
    ("3.1.5", "f91c690f375ecd4d600eb126ca5a920a5c9ad0f4"),
    ("3.1.2", "3887cbd1d67b58ba6f88c50a069b679e20743984"),
    ("3.1.1", "375a182bc03b0c78b489e18a0d6af222916a48d2"),
    ("3.1.0", "e9d3c5d98e7229118309f6d4bbc9446bad7c4c3d"),
    ("3.0.5", "a9f902e5c552780589a15ba458adb48984359165"),
    ("3.0.0", "c90ec746a7e77ef5b108554be2133dfd1e1ab1b2"),
]

SUPPORT_LINKS = {
    "TigerGraph Community": "https://community.tigergraph.com",
    "TigerGraph Discord": "https://discord.gg/GkEmvDqB",
}
