"""
Core library shared by the sync agent.

Download engine, retry policy, error hierarchy, structured logging and
security helpers, kept free of agent-specific wiring.
"""
