"""Business services of the binary plan."""
