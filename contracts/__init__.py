"""
Contracts module.

Positioned text/date/signature fields on a PDF, an owner and a
counterparty signing phase bound by a share link, and export of the merged,
signed document.
"""
