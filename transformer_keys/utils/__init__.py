"""File locking and atomic JSON document writes."""
