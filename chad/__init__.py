"""Chad session builder: windowed, attributed session logs from raw dev transcripts."""
