"""HTTP routers for the voting node."""
