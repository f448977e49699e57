import re, unicodedata


name_stopwords_default = (
	'station', 'stop', 'metro', 'metrostation',
	'метростанция', 'станция', 'спирка', 'метро' )

def normalize_name(name, stopwords=name_stopwords_default):
	'''Normalize stop display name for comparisons:
		lowercase, no diacritics/punctuation, no generic words like "station".'''
	name = unicodedata.normalize('NFKD', name or '').lower()
	name = ''.join(c for c in name if not unicodedata.combining(c))
	words = re.sub(r'[\W_]+', ' ', name).split()
	return ' '.join(w for w in words if w not in stopwords)

def names_similar(name_a, name_b, stopwords=name_stopwords_default, token_min=4):
	'''Check whether two stop names likely refer to the same place,
		i.e. one contains the other or they share a significant word.'''
	norm_a, norm_b = (normalize_name(n, stopwords) for n in [name_a, name_b])
	if not (norm_a and norm_b): return False
	flat_a, flat_b = norm_a.replace(' ', ''), norm_b.replace(' ', '')
	if flat_a in flat_b or flat_b in flat_a: return True
	words_a = set(w for w in norm_a.split() if len(w) >= token_min)
	return any(w in words_a for w in norm_b.split() if len(w) >= token_min)
