"""Blocker Board -- a minimal site-blocker tracker built on sitegate."""
