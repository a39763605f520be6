"""
Scheduled Jobs Package
======================

Jobs invoked by the external scheduler through the service-key protected
/jobs endpoints. Each job owns its commit and returns a JSON-ready dict.
"""
