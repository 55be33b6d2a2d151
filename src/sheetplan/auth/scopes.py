"""
Google OAuth Scopes for sheetplan.

This module defines the OAuth scopes requested when signing a user in.
"""

from typing import List

# Base OAuth scopes required for user identification
USERINFO_EMAIL_SCOPE = "https://www.googleapis.com/auth/userinfo.email"
USERINFO_PROFILE_SCOPE = "https://www.googleapis.com/auth/userinfo.profile"
OPENID_SCOPE = "openid"

BASE_SCOPES = [USERINFO_EMAIL_SCOPE, USERINFO_PROFILE_SCOPE, OPENID_SCOPE]

# Google Drive scopes
DRIVE_FILE_SCOPE = "https://www.googleapis.com/auth/drive.file"

# Google Sheets scopes
SHEETS_READONLY_SCOPE = "https://www.googleapis.com/auth/spreadsheets.readonly"
SHEETS_WRITE_SCOPE = "https://www.googleapis.com/auth/spreadsheets"

SHEETS_SCOPES = [SHEETS_READONLY_SCOPE, SHEETS_WRITE_SCOPE]

# Plans are spreadsheets the app creates itself, so drive.file is enough
SCOPES = [
    SHEETS_WRITE_SCOPE,
    DRIVE_FILE_SCOPE,
]


def get_scopes() -> List[str]:
    """
    Get the default OAuth scopes for sheetplan.

    Returns:
        List of unique OAuth scopes, in declaration order.
    """
    return list(dict.fromkeys(SCOPES))
