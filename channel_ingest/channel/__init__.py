"""Channel ingestion: catalog listing, classification, reconciliation and sync.

Submodules are imported directly (``channel_ingest.channel.sync`` etc.);
this package does not re-export them.
"""
