#!/usr/bin/env python
# -*- coding: utf-8 -*-
from setuptools import setup

with open('centermap/__init__.py') as f:
    for line in f:
        if line.startswith('__version__'):
            VERSION = line.split('\'')[1]
            break

with open('requirements.txt') as f:
    required = [line.strip() for line in f if line.strip()]

with open('README.rst') as f:
    long_description = f.read()

setup(
    name='centermap',
    version=VERSION,
    author='centermap contributors',
    description='Create map images centered on a location from slippy map tiles.',
    long_description=long_description,
    packages=['centermap'],
    python_requires='>=3.7',
    install_requires=required,
    extras_require={
        'test': ['pytest'],
    },
    entry_points = {
        'console_scripts': [
            'centermap = centermap.main:main',
        ]
    },
    license='MIT',
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'Natural Language :: English',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
    ],
)
