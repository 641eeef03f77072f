# Environment variables
ENV_BASE_URL = "WEBSERVICE_BASE_URL"
ENV_TIMEOUT = "WEBSERVICE_TIMEOUT"

# Headers
HEADER_USER_AGENT = "User-Agent"
HEADER_CONTENT_TYPE = "Content-Type"
HEADER_CONTENT_LENGTH = "Content-Length"
HEADER_ACCEPT = "Accept"
HEADER_CACHE_CONTROL = "Cache-Control"

# Content types
CONTENT_TYPE_FORM_ENCODED = "application/x-www-form-urlencoded"
CONTENT_TYPE_JSON = "application/json"

# Logging
LOGGER_NAME = "webservice"

# Distribution name, used for the default user agent
PACKAGE_NAME = "webservice-facade"
