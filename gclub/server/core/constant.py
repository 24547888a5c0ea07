"""Static values shared by the server package."""

PROJECT_NAME = "G-Club Community Server"
API_V1_STR = "/api/v1"
VERSION = "0.1.0"
SCHEMA_VERSION = "v1"
