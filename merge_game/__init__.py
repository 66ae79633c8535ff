"""
Merge Game Package
==================

Core engine and evaluation tooling for the tile-merge grid game:

- Board state machine (placement, merge resolution, gravity, game over)
- Item catalog and next-item RNG
- Session store for hosting many concurrent games
- Gymnasium environment and seed-bank evaluation for agents

All tunable parameters are in game_config.yaml.
"""
