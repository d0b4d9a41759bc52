"""Dataflow analyses over the CPS intermediate representation."""