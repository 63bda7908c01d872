"""Agenda - appointment scheduling API"""
