"""Microsoft Graph access: auth, HTTP client, sites, listings and content."""
