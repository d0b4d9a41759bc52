"""CPS intermediate representation: conversion, interpretation and dataflow analysis."""

__version__ = "0.1.0"