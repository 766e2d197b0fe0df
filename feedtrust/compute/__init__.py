"""
Feedtrust — Compute layer
Signal derivation, storage backends and the score refresh job.
"""
