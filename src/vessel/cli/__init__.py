"""Vessel command line interface"""
