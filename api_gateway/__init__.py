"""
API Gateway.

HTTP surface and process bootstrap for the render server.
"""
