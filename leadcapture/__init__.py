"""
Lead capture analytics.

The analytics engine lives in leadcapture.analytics and runs on plain
records; leadcapture.models holds the stored rows those records come from.
"""
