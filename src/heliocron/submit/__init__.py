"""
Submit - transaction orchestration for heliocron.

- fees:      funds pre-flight (deposit + gas with a safety margin)
- nonce:     nonce reads, pending-backlog grace wait, one-shot reset
- retry:     fixed-delay bounded retry around one logical transaction
- jobs:      JobSpec and expiration-block arithmetic
- submitter: deploy / register-job use cases
- verify:    post-deployment code and introspection check
"""
