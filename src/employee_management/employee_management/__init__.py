"""Employee Management System package.

This package is organized by feature modules (users, attendance, announcements,
leaderboard, ...) with a thin Flask controller layer and service/repository layers.
"""
