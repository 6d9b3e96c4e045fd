"""Shared helpers: domain errors, validators and the scheduling clock"""
