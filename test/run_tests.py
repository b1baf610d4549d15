#! /usr/bin/env python3

import argparse
import sys
import unittest

from test_checksum import TestChecksum
from test_commands import TestCLI, TestCommands
from test_header import TestHeader, TestSignature
from test_image import TestAssemble, TestParse
from test_uimage import TestBootloaderImage

parser = argparse.ArgumentParser(description='Run the automated tests')
parser.add_argument('--no-files', dest='files', help='Do not run the tests that read and write files', action='store_false')
parser.add_argument('--verbosity', '-v', help='Test runner verbosity', type=int, default=2)
args = parser.parse_args()

# Run tests
suite = unittest.TestSuite()
suite.addTests(unittest.defaultTestLoader.loadTestsFromTestCase(TestChecksum))
suite.addTests(unittest.defaultTestLoader.loadTestsFromTestCase(TestHeader))
suite.addTests(unittest.defaultTestLoader.loadTestsFromTestCase(TestSignature))
suite.addTests(unittest.defaultTestLoader.loadTestsFromTestCase(TestAssemble))
suite.addTests(unittest.defaultTestLoader.loadTestsFromTestCase(TestParse))
suite.addTests(unittest.defaultTestLoader.loadTestsFromTestCase(TestBootloaderImage))
if args.files:
    suite.addTests(unittest.defaultTestLoader.loadTestsFromTestCase(TestCommands))
    suite.addTests(unittest.defaultTestLoader.loadTestsFromTestCase(TestCLI))
success = unittest.TextTestRunner(stream=sys.stdout, verbosity=args.verbosity).run(suite).wasSuccessful()

sys.exit(not success)
