"""
Core integrations: Graph API access and AI drafting.
"""
