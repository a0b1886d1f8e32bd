#
# Upload to pypi:
#   python setup.py sdist bdist_wheel
#   twine upload dist/*
#
from setuptools import setup
import os
import io
import itertools
import re
import ast

_version_re = re.compile(r'__version__\s+=\s+(.*)')
_license_re = re.compile(r'__license__\s+=\s+(.*)')
_author_re = re.compile(r'__author__\s+=\s+(.*)')
line_numbers = 20

here = os.path.abspath(os.path.dirname(__file__))
with io.open(os.path.join(here, 'softmag', '__init__.py'), 'r') as f:
    meta_data = ''.join(itertools.islice(f, line_numbers))

version = str(ast.literal_eval(_version_re.search(meta_data).group(1)))
license = str(ast.literal_eval(_license_re.search(meta_data).group(1)))
author = str(ast.literal_eval(_author_re.search(meta_data).group(1)))

with io.open(os.path.join(here, 'README.rst'), encoding='utf-8') as f:
    long_description = f.read()

setup(
    description='softmag: permeability curves and iron losses of electrical steel',
    long_description=long_description,
    author=author,
    version=version,
    install_requires=['numpy', 'scipy'],
    extras_require={'plot': ['matplotlib'],
                    'test': ['pytest', 'hypothesis']},
    packages=['softmag'],
    license=license,
    name='softmag',
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Science/Research',
        'License :: OSI Approved :: BSD License',
        'Programming Language :: Python :: 3',
        'Topic :: Scientific/Engineering']
)
