"""
Pipeline functions - stateless orchestration between routers and services.
"""
