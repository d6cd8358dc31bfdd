"""End-to-end tests that fork, signal and reap real child processes."""
