"""
Test package for the GitLab repo analyzer.
"""
