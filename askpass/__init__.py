"""askpass - sudo ASKPASS helper for CI pipelines and workstations."""
