"""Google Sheets client used by plans."""
from .sheets import GoogleSheetsAPI, GoogleSpreadsheet

__all__ = ['GoogleSheetsAPI', 'GoogleSpreadsheet']
