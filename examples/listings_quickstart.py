import logging
import sys
from time import perf_counter
from pricetree import PriceBracketClassifier, load_listings

logging.basicConfig(level=logging.INFO, format='%(message)s')

path = sys.argv[1] if len(sys.argv) > 1 else "listings.csv"
train, evaluation = load_listings(path, every=4)

clf = PriceBracketClassifier(verbose=1)
t0 = perf_counter(); clf.fit(train); print(f"fit: {perf_counter()-t0:.3f} s")

for line in clf.format_arena():
    print(line)
print(f"held-out accuracy: {clf.score(evaluation):.3f}")

try:
    clf.export_graphviz("listings_tree", format="dot")
except RuntimeError as e:
    print(f"Skipping Graphviz export: {e}")
