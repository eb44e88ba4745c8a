"""HTTP API for job submission, status and fleet administration."""
