"""Inbox API: conversation search and keyset-paginated listing."""
