"""Helpers shared by the remote service client and the synchronizer."""
