"""
Bracket View Service - read-side enrichment for TrueFinals tournaments

Responsibilities:
- Resolve player/location ids into display names
- Reconstruct bracket rounds, progress counters and champions
- Compute tie-break standings
- Annotate participants with NHRL Statsbook ranking and streak data
- Serve the enriched documents over a small JSON API
"""
