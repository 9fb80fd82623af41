from setuptools import setup, find_packages

setup(
    name='aiofanin',
    version='0.1.0',
    packages=find_packages(),
    platforms='any',
    classifiers=[
        'Development Status :: 4 - Beta',
        'License :: OSI Approved :: Apache Software License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.12',
    ],
    license='Apache',
    python_requires='>=3.8',
    tests_require=['pytest', 'pytest-asyncio'],
    extras_require={'test': ['pytest', 'pytest-asyncio']},
    entry_points={'console_scripts': ['aiofanin = aiofanin.__main__:cli']},
    description='Go-style fan-in multiplexing over rendezvous channels for asyncio',
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
)
