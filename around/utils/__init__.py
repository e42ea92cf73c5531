"""Shared helpers: configuration, logging, exceptions, geo parsing"""
