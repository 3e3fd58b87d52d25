"""Batched-mutation client for SharePoint-style list and field metadata."""
