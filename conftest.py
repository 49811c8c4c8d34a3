"""
Test configuration for lifecycle-core
"""

import os
import sys

# Add lifecycle-core to Python path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

# Configure Django settings for tests
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'test_settings')
