"""
Core service engine.

The `RequestOrchestrator` runs one request at a time through the
`IdentifierResolver`, the tiered selector and the `ArtifactWriter`;
`ServiceRuntime` builds and owns all of them.
"""
