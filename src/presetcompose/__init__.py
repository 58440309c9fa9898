"""presetcompose — preset-driven composition documents.

Run parameterized preset functions in order, resolve data:[key]
references against a shared pool of named values, and fold each
preset's output into one composition document under a merge policy.
Presets and generation runs are declared in YAML manifests.
"""
