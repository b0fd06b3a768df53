"""Counter store adapters.

This package provides the shared-counter abstraction the rate limiter relies
on, with an in-memory backing for single-process use and a Redis backing for
deployments running several instances.
"""
