"""
Provisioning service — host probe, install helpers and the zsh / nvim plans.

Layers:
    data/           L0 pure data tables
    domain/         L1 pure logic
    detection/      L3 read-only probes
    execution/      L4 writes
    orchestration/  L5 plans and the run
"""
