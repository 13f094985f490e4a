"""Routing: per-method route table with first-match-wins resolution.

Routes are registered during setup and frozen when the app starts
serving. Resolution walks the routes of one method in registration
order; the first pattern that matches wins.
"""
