#!/usr/bin/env python3
"""
Setup script for winleap
"""

from setuptools import setup, find_packages
import os
import sys

HERE = os.path.dirname(os.path.abspath(__file__))

# Import version from the package directory without importing the package
sys.path.insert(0, os.path.join(HERE, 'winleap'))
from __version__ import __version__

# README for long_description
def read_file(filename):
    with open(os.path.join(HERE, filename), encoding='utf-8') as f:
        return f.read()

setup(
    name='winleap',
    version=__version__,
    description='Window jumper for X11 - activate windows by typed prefix or numbered mark',
    long_description=read_file('README.md'),
    long_description_content_type='text/markdown',
    packages=find_packages(exclude=['tests', 'docs']),
    python_requires='>=3.9',
    install_requires=[
        'python-xlib',   # EWMH window list, activation and keyboard grab
    ],
    extras_require={
        'dev': [
            'pytest>=7.0',
            'pytest-cov',
            'pytest-timeout',
        ],
    },
    entry_points={
        'console_scripts': [
            'winleap=winleap.cli:main',
            'winleap-grab-keys=winleap.cli:grab_keys_main',
        ],
    },
    data_files=[
        # Example mark file
        ('share/winleap', ['config/winleap.conf.example']),
    ],
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: End Users/Desktop',
        'Topic :: Utilities',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Programming Language :: Python :: 3.13',
        'Operating System :: POSIX :: Linux',
        'Environment :: X11 Applications',
        'Topic :: Desktop Environment',
    ],
)
