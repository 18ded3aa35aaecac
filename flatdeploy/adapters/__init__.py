"""
Adapters — contracts for the collaborators the core does not implement.

    ClusterTransport — per-machine fan-out image operations
    NetworkHook      — platform firewall/network chain configuration
"""
