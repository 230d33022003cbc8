from channel_ingest.cli import app

app()
