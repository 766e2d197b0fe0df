"""Feedtrust — profile quality, spam and trust scoring for feed accounts."""
