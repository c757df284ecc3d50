"""SonarQube / SonarCloud server helpers.

  - api.py : HTTP calls (server version detection)

Argument building and the begin step itself live in :mod:`sonar_msbuild`.
"""
