"""Centralized constants for sheetplan."""

# Client library script
DEFAULT_API_URL = "https://apis.google.com/js/api.js"
API_GLOBAL_NAME = "gapi"

# Timeouts (milliseconds)
DEFAULT_SCRIPT_TIMEOUT_MS = 15000
DEFAULT_MODULE_TIMEOUT_MS = 15000

# Seconds to wait for the browser consent redirect before giving up
DEFAULT_SIGN_IN_TIMEOUT_S = 300

# One animation frame at 60Hz
DEFAULT_POLL_INTERVAL_MS = 16

# Library module names
MODULE_CLIENT = 'client'
MODULE_AUTH2 = 'auth2'
MODULE_SEPARATOR = ':'

# Discovery documents
SHEETS_DISCOVERY_DOC = "https://sheets.googleapis.com/$discovery/rest?version=v4"
DEFAULT_DISCOVERY_DOCS = [SHEETS_DISCOVERY_DOC]

# OAuth error discriminators
ERROR_POPUP_CLOSED = 'popup_closed_by_user'
ERROR_ACCESS_DENIED = 'access_denied'

# Plan spreadsheet template
PLAN_TITLE = 'Financial Plan'
