"""
Bracket services

- pool_assignment / bracket_builder / finalist_resolution: pure derivation
  from a roster snapshot and a result log
- result_store / roster: database access, failures raised as ResultStoreError
- placement_service: summary and clubbed rows emitted after a winner is recorded
- bracket_service: the operations the routes call

None of these depend on HTTP request/response objects.
"""
