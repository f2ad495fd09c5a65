"""Voice AI Friend: low-latency companion replies for voice chat."""
