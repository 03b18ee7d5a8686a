"""
Commands - CLI command implementations for heliocron.

- deploy:   Deploy the tick contract, verify it, write deployment.json
- schedule: Register the recurring tick() job on the cron precompile
"""
