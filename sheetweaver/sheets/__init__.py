"""Google Sheets collaborator: backend protocol, A1 helpers and sheet layout."""
