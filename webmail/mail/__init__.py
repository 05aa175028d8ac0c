"""Mailbox queries, access control and reply/forward derivation."""
