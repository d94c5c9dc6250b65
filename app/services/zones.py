"""
Static neighbourhood table used when a reservation arrives without pickup
coordinates. Entries are matched as substrings of the lower-cased address in
table order, so longer or more specific names must stay ahead of any shorter
name they contain if the specific match is wanted (e.g. "port" shadows
"aeroport yoff").
"""

Zone = tuple[str, float, float]

DEFAULT_CITY_CENTER: tuple[float, float] = (14.6928, -17.4467)  # Plateau

DAKAR_ZONES: tuple[Zone, ...] = (
    ("plateau", 14.6928, -17.4467),
    ("place de l'indépendance", 14.6928, -17.4467),
    ("rebeuss", 14.6850, -17.4450),
    ("port", 14.6800, -17.4150),
    ("petersen", 14.6890, -17.4380),
    ("sandaga", 14.6750, -17.4300),
    ("tilene", 14.6800, -17.4200),
    ("kermel", 14.6700, -17.4350),
    ("marché sandaga", 14.6750, -17.4300),
    ("marché kermel", 14.6700, -17.4350),
    ("gare routière", 14.6780, -17.4400),
    ("dieuppeul", 14.6900, -17.4600),
    ("medina", 14.6738, -17.4387),
    ("gueule tapée", 14.6800, -17.4350),
    ("gueule tapee", 14.6800, -17.4350),
    ("fass", 14.6820, -17.4500),
    ("fass delorme", 14.6850, -17.4520),
    ("colobane", 14.6870, -17.4550),
    ("gueule tapée fass colobane", 14.6830, -17.4480),
    ("ndiolofene", 14.6760, -17.4420),
    ("derklé", 14.6790, -17.4460),
    ("derkle", 14.6790, -17.4460),
    ("reubeuss", 14.6850, -17.4450),
    ("somba gueladio", 14.6880, -17.4380),
    ("scat urbam", 14.6810, -17.4490),
    ("nim", 14.6795, -17.4365),
    ("dalifort", 14.7200, -17.4100),
    ("fann", 14.6872, -17.4535),
    ("fann résidence", 14.6890, -17.4550),
    ("fann residence", 14.6890, -17.4550),
    ("point e", 14.6953, -17.4614),
    ("point-e", 14.6953, -17.4614),
    ("amitié", 14.7014, -17.4647),
    ("amitie", 14.7014, -17.4647),
    ("sacré-coeur", 14.6937, -17.4441),
    ("sacre-coeur", 14.6937, -17.4441),
    ("sacre coeur", 14.6937, -17.4441),
    ("mermoz", 14.7108, -17.4682),
    ("pyrotechnie", 14.6920, -17.4580),
    ("cité asecna", 14.7050, -17.4700),
    ("cite asecna", 14.7050, -17.4700),
    ("sicap baobabs", 14.7100, -17.4650),
    ("keur gorgui", 14.7020, -17.4620),
    ("fann bel air", 14.6900, -17.4560),
    ("fann bel-air", 14.6900, -17.4560),
    ("sicap", 14.7289, -17.4594),
    ("hlm", 14.7306, -17.4542),
    ("hlm grand yoff", 14.7350, -17.4600),
    ("hlm grand-yoff", 14.7350, -17.4600),
    ("grand yoff", 14.7400, -17.4700),
    ("grand-yoff", 14.7400, -17.4700),
    ("village grand yoff", 14.7450, -17.4750),
    ("arafat", 14.7380, -17.4650),
    ("cité millionnaire", 14.7320, -17.4570),
    ("cite millionnaire", 14.7320, -17.4570),
    ("sipres", 14.7340, -17.4610),
    ("sicap rue 10", 14.7270, -17.4580),
    ("sicap amitié", 14.7280, -17.4600),
    ("sicap amitie", 14.7280, -17.4600),
    ("sicap baobab", 14.7290, -17.4620),
    ("sicap mbao", 14.7300, -17.4560),
    ("sicap foire", 14.7250, -17.4550),
    ("dieuppeul derklé", 14.7150, -17.4650),
    ("dieuppeul derkle", 14.7150, -17.4650),
    ("camp pénal", 14.7360, -17.4580),
    ("camp penal", 14.7360, -17.4580),
    ("castors", 14.7420, -17.4720),
    ("parcelles assainies", 14.7369, -17.4731),
    ("parcelles", 14.7369, -17.4731),
    ("unité 1", 14.7300, -17.4650),
    ("unite 1", 14.7300, -17.4650),
    ("unité 2", 14.7320, -17.4680),
    ("unite 2", 14.7320, -17.4680),
    ("unité 3", 14.7340, -17.4710),
    ("unite 3", 14.7340, -17.4710),
    ("unité 4", 14.7360, -17.4740),
    ("unite 4", 14.7360, -17.4740),
    ("unité 5", 14.7380, -17.4770),
    ("unite 5", 14.7380, -17.4770),
    ("unité 6", 14.7400, -17.4800),
    ("unite 6", 14.7400, -17.4800),
    ("unité 7", 14.7420, -17.4830),
    ("unite 7", 14.7420, -17.4830),
    ("unité 8", 14.7440, -17.4860),
    ("unite 8", 14.7440, -17.4860),
    ("unité 9", 14.7460, -17.4890),
    ("unite 9", 14.7460, -17.4890),
    ("unité 10", 14.7480, -17.4920),
    ("unite 10", 14.7480, -17.4920),
    ("cambérène", 14.7500, -17.4950),
    ("camberene", 14.7500, -17.4950),
    ("apecsy", 14.7350, -17.4760),
    ("apix", 14.7370, -17.4780),
    ("almadies", 14.7247, -17.5050),
    ("les almadies", 14.7247, -17.5050),
    ("pointe des almadies", 14.7200, -17.5300),
    ("ngor", 14.7517, -17.5192),
    ("virage ngor", 14.7500, -17.5150),
    ("village ngor", 14.7550, -17.5250),
    ("ile de ngor", 14.7600, -17.5350),
    ("yoff", 14.7500, -17.4833),
    ("village yoff", 14.7550, -17.4900),
    ("tonghor", 14.7530, -17.4850),
    ("aeroport yoff", 14.7400, -17.4900),
    ("aéroport yoff", 14.7400, -17.4900),
    ("ouakam", 14.7200, -17.4900),
    ("cité des eaux", 14.7150, -17.4950),
    ("cite des eaux", 14.7150, -17.4950),
    ("mamelles", 14.7100, -17.5000),
    ("les mamelles", 14.7100, -17.5000),
    ("virage", 14.7314, -17.4636),
    ("cité sonatel", 14.7250, -17.4850),
    ("cite sonatel", 14.7250, -17.4850),
    ("liberté", 14.7186, -17.4697),
    ("liberte", 14.7186, -17.4697),
    ("liberté 1", 14.7150, -17.4650),
    ("liberte 1", 14.7150, -17.4650),
    ("liberté 2", 14.7170, -17.4680),
    ("liberte 2", 14.7170, -17.4680),
    ("liberté 3", 14.7190, -17.4710),
    ("liberte 3", 14.7190, -17.4710),
    ("liberté 4", 14.7210, -17.4740),
    ("liberte 4", 14.7210, -17.4740),
    ("liberté 5", 14.7230, -17.4770),
    ("liberte 5", 14.7230, -17.4770),
    ("liberté 6", 14.7250, -17.4800),
    ("liberte 6", 14.7250, -17.4800),
    ("grand dakar", 14.6928, -17.4580),
    ("grand-dakar", 14.6928, -17.4580),
    ("hann", 14.7150, -17.4380),
    ("bel air", 14.7100, -17.4400),
    ("bel-air", 14.7100, -17.4400),
    ("halte de hann", 14.7150, -17.4380),
    ("marché hann", 14.7130, -17.4350),
    ("marche hann", 14.7130, -17.4350),
    ("hann bel air", 14.7120, -17.4390),
    ("hann bel-air", 14.7120, -17.4390),
    ("hann maristes", 14.7140, -17.4360),
    ("patte d'oie", 14.7200, -17.4500),
    ("patte d'oie builders", 14.7220, -17.4520),
    ("pikine", 14.7549, -17.3940),
    ("pikine nord", 14.7600, -17.3950),
    ("pikine est", 14.7550, -17.3850),
    ("pikine ouest", 14.7500, -17.4000),
    ("pikine sud", 14.7480, -17.3900),
    ("thiaroye", 14.7730, -17.3610),
    ("thiaroye sur mer", 14.7750, -17.3550),
    ("diamaguène", 14.7600, -17.3800),
    ("diamaguene", 14.7600, -17.3800),
    ("icotaf", 14.7650, -17.3700),
    ("guinaw rail", 14.7520, -17.3880),
    ("guédiawaye", 14.7690, -17.3990),
    ("guediawaye", 14.7690, -17.3990),
    ("sam notaire", 14.7700, -17.4100),
    ("sam", 14.7700, -17.4100),
    ("ndiarème limamoulaye", 14.7720, -17.4050),
    ("ndiarem limamoulaye", 14.7720, -17.4050),
    ("golf sud", 14.7750, -17.4200),
    ("hamo", 14.7770, -17.4150),
    ("médina gounass", 14.7680, -17.3950),
    ("medina gounass", 14.7680, -17.3950),
    ("wakhinane", 14.7730, -17.4000),
    ("golf", 14.7750, -17.4200),
    ("ndiarème", 14.7720, -17.4050),
    ("ndiarem", 14.7720, -17.4050),
    ("keur massar", 14.7833, -17.3167),
    ("keurmassar", 14.7833, -17.3167),
    ("keur massar centre", 14.7833, -17.3167),
    ("keur massar ville", 14.7850, -17.3150),
    ("keur massar marché", 14.7820, -17.3180),
    ("keur massar marche", 14.7820, -17.3180),
    ("boune", 14.7950, -17.3250),
    ("boune 1", 14.7960, -17.3240),
    ("boune 2", 14.7970, -17.3260),
    ("boune 3", 14.7980, -17.3280),
    ("tivaouane peulh", 14.8050, -17.3300),
    ("tivaouane peul", 14.8050, -17.3300),
    ("tivaoune peul", 14.8050, -17.3300),
    ("tivaouane peulh niaga", 14.8070, -17.3280),
    ("jaxaay", 14.7800, -17.2950),
    ("djaxaay", 14.7800, -17.2950),
    ("jaxaye", 14.7800, -17.2950),
    ("jaxaay parcelles", 14.7820, -17.2920),
    ("bambilor", 14.7780, -17.2900),
    ("yeumbeul", 14.7720, -17.3420),
    ("yembeul", 14.7720, -17.3420),
    ("yeumbeul nord", 14.7750, -17.3400),
    ("yeumbeul sud", 14.7700, -17.3450),
    ("malika", 14.7800, -17.3600),
    ("malika centre", 14.7800, -17.3600),
    ("mbeubeuss", 14.7750, -17.3000),
    ("mbeubeus", 14.7750, -17.3000),
    ("ndiaganiao", 14.7900, -17.3050),
    ("cité keur damel", 14.7860, -17.3200),
    ("cite keur damel", 14.7860, -17.3200),
    ("diamaguène sicap mbao", 14.7650, -17.3100),
    ("diamaguene sicap mbao", 14.7650, -17.3100),
    ("mbao", 14.7300, -17.3200),
    ("rufisque", 14.7167, -17.2667),
    ("bargny", 14.7000, -17.2167),
    ("sangalkam", 14.8000, -17.2500),
)
