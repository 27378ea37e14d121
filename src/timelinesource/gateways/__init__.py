"""Remote fetch gateways — Pluggable connectors for the backing store.

Built-in gateways:
  - webapi: OData Web API over HTTP (Dataverse style entity sets)
  - memory: in-process item store, for embedding and tests

Implement ``RecordGateway`` to connect another backing store.
"""
